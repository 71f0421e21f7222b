"""
Pointsman signals — public event API.

Emitted signals (always after the database work is done):
- customer_enrolled: CustomerService.enroll()          sender=Customer, customer, account
- points_changed: every applied ledger mutation         sender=LedgerAccount, account, entry
- purchase_recorded: PurchaseService.record_purchase()  sender=PurchaseTransaction, transaction, promotion
- redemption_completed: RedemptionService.redeem()      sender=RedemptionLog, redemption
- redemption_used: RedemptionService.mark_used()        sender=RedemptionLog, redemption
- redemption_cancelled: RedemptionService.cancel()      sender=RedemptionLog, redemption
"""

from django.dispatch import Signal

customer_enrolled = Signal()
points_changed = Signal()
purchase_recorded = Signal()
redemption_completed = Signal()
redemption_used = Signal()
redemption_cancelled = Signal()
