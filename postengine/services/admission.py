"""
Admission Controller - the paywall in front of model calls.
"""

from postengine.models.domain import AccountData, AdmissionDecision, AdmissionReason


def authorize(account: AccountData, balance: int, cost: int) -> AdmissionDecision:
    """
    Decide whether a generation may proceed.

    Paid accounts always pass and are never debited. Free accounts pass only
    when the balance covers the cost; a denial reports the current balance
    so the client can show remaining trial usage.
    """
    if cost < 1:
        raise ValueError(f"Generation cost must be positive: {cost}")

    if account.is_pro:
        return AdmissionDecision(allow=True, reason=AdmissionReason.PRO_PLAN, balance=balance)

    if balance >= cost:
        return AdmissionDecision(allow=True, reason=AdmissionReason.OK, balance=balance)

    return AdmissionDecision(
        allow=False, reason=AdmissionReason.CREDITS_EXHAUSTED, balance=max(balance, 0)
    )
