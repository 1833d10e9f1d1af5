"""
Tuition Kernel

Persistence and reconciliation core for the tuition installment tracker:
- Full-snapshot semester synchronization
- Identity-preserving installment updates
- Paid-floor protection for recorded payments
- Weak installment -> expense links with repair
"""

__version__ = "0.1.0"
