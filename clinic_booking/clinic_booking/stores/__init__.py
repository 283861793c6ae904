"""
Booking Stores

Persistence for the scheduling core:
- Base store interface (base.py)
- Factory for getting the configured store (factory.py)
- Frappe/MariaDB implementation with row locks (frappe_store.py)
- Transactional in-process implementation (memory.py)
"""
