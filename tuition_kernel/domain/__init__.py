"""Pure domain layer: snapshot DTOs, diff planning and schedule policy."""
