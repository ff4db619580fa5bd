"""Installment plan calculator (MSI, "meses sin intereses").

Splits one purchase into a counter-entry that offsets it and a monthly
schedule of payments. The rounding remainder is folded into the first
payment so the payments always add up to the purchase exactly:

    1000.00 over 3 months -> -333.34, -333.33, -333.33
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from budgetsync.domain.entities import (
    ChangeAction,
    ClearedStatus,
    EntityType,
    Flag,
    InstallmentConfig,
    InstallmentPlan,
    NewChange,
    ScheduledTransactionPayload,
    TransactionPayload,
)
from budgetsync.domain.errors import ValidationError
from budgetsync.utils.amount_parser import round_currency
from budgetsync.utils.date_parser import add_months, parse_date

ALLOWED_MONTHS = (3, 6, 9, 12, 18, 24)

MONTH_OPTIONS = tuple((months, f"{months} months") for months in ALLOWED_MONTHS)

MSI_FLAG = Flag.ORANGE
MONTHLY = "Monthly"


def _start_date(config: InstallmentConfig) -> Optional[date]:
    try:
        return parse_date(config.start_date)
    except ValueError:
        return None


def validate(config: InstallmentConfig) -> list[str]:
    """Check every precondition of a plan.

    Args:
        config: Installment configuration

    Returns:
        List of failure reasons; empty if the configuration is valid
    """
    reasons = []
    amount = Decimal(str(config.original.amount))

    if amount >= 0:
        reasons.append("Installments only apply to outflows (purchases)")

    if config.months not in ALLOWED_MONTHS:
        choices = ", ".join(str(m) for m in ALLOWED_MONTHS)
        reasons.append(f"Installment months must be one of {choices}")

    if config.start_date is None or (isinstance(config.start_date, str) and not config.start_date.strip()):
        reasons.append("Start date is required")
    elif _start_date(config) is None:
        reasons.append(f"Start date '{config.start_date}' could not be parsed")

    if isinstance(config.months, int) and config.months > 0 and abs(amount) < config.months:
        reasons.append("Amount is too small to split into monthly payments")

    return reasons


def calculate(config: InstallmentConfig) -> InstallmentPlan:
    """Build the counter-entry and payment schedule for a purchase.

    Args:
        config: Installment configuration

    Returns:
        The installment plan

    Raises:
        ValidationError: If any precondition fails; lists every reason
    """
    reasons = validate(config)
    if reasons:
        raise ValidationError("; ".join(reasons), reasons)

    original = config.original
    months = config.months
    start = _start_date(config)

    abs_amount = abs(Decimal(str(original.amount)))
    monthly_amount = round_currency(abs_amount / months)
    rounding_adjustment = abs_amount - monthly_amount * months
    first_payment = -(monthly_amount + rounding_adjustment)
    payments = (first_payment,) + (-monthly_amount,) * (months - 1)

    counter_entry = NewChange(
        entity_type=EntityType.TRANSACTION,
        action=ChangeAction.CREATE,
        entity_name=f"MSI: {original.payee_name}",
        payload=TransactionPayload(
            account_id=original.account_id,
            date=original.date,
            amount=abs_amount,
            payee_name=f"MSI: {original.payee_name}",
            category_id=config.counter_category_id or original.category_id,
            memo=f"MSI {months} months - offset for {original.payee_name}",
            cleared=ClearedStatus.UNCLEARED,
            flag=MSI_FLAG,
        ),
    )

    schedule_entry = NewChange(
        entity_type=EntityType.SCHEDULED_TRANSACTION,
        action=ChangeAction.CREATE,
        entity_name=original.payee_name,
        payload=ScheduledTransactionPayload(
            account_id=original.account_id,
            date_first=start,
            date_next=start,
            frequency=MONTHLY,
            amount=first_payment,
            payee_id=original.payee_id,
            payee_name=original.payee_name,
            category_id=original.category_id,
            memo=f"MSI {months} months - payment 1/{months}",
            flag=MSI_FLAG,
        ),
    )

    return InstallmentPlan(
        monthly_amount=monthly_amount,
        total_amount=abs_amount,
        rounding_adjustment=rounding_adjustment,
        counter_entry=counter_entry,
        schedule_entry=schedule_entry,
        payments=payments,
    )


def generate_payments(config: InstallmentConfig) -> list[NewChange]:
    """Expand a plan into one transaction per month instead of a schedule.

    Raises:
        ValidationError: If any precondition fails
    """
    plan = calculate(config)
    original = config.original
    start = _start_date(config)
    months = config.months

    return [
        NewChange(
            entity_type=EntityType.TRANSACTION,
            action=ChangeAction.CREATE,
            entity_name=original.payee_name,
            payload=TransactionPayload(
                account_id=original.account_id,
                date=add_months(start, i),
                amount=amount,
                payee_id=original.payee_id,
                payee_name=original.payee_name,
                category_id=original.category_id,
                memo=f"MSI {months} months - payment {i + 1}/{months}",
                cleared=ClearedStatus.UNCLEARED,
                flag=MSI_FLAG,
            ),
        )
        for i, amount in enumerate(plan.payments)
    ]
