"""Invoice engine domain service.

Invoice status is stored state. Every transition goes through this service:

    DRAFT -> SENT -> PARTIALLY_PAID -> PAID
    SENT / PARTIALLY_PAID -> OVERDUE (by mark_overdue once past due)
    any state except PAID -> CANCELLED

PAID and CANCELLED are terminal.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Sequence

from finstream.database.base import Database
from finstream.domain.entities import (
    Invoice as InvoiceEntity,
    InvoiceItemInput,
    InvoiceStatus,
    Payment as PaymentEntity,
)
from finstream.domain.errors import (
    ConflictError,
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    OverpaymentRejectedError,
    ValidationError,
    invalid_transition,
    invoice_not_found,
)
from finstream.logging_config import get_logger
from finstream.utils.amount_parser import round_money, to_money, to_quantity, to_rate
from finstream.utils.date_parser import as_date

logger = get_logger(__name__)

PAYABLE_STATUSES = (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.OVERDUE)
OVERDUE_CANDIDATES = (InvoiceStatus.SENT, InvoiceStatus.PARTIALLY_PAID)
INVOICE_NUMBER_FORMAT = "INV-{:05d}"


def calculate_totals(
    items: Sequence[InvoiceItemInput], tax_rate: Decimal
) -> tuple[list[InvoiceItemInput], Decimal, Decimal, Decimal]:
    """Validate items and compute their amounts and the invoice totals.

    Item amounts default to quantity x price rounded half-up to cents. Tax
    applies to taxable items only and is rounded once on the invoice.

    Returns:
        Tuple of (items with amounts resolved, subtotal, tax_amount, total)

    Raises:
        ValidationError: If there are no items, an item is invalid or the total is not positive
    """
    if not items:
        raise ValidationError("An invoice needs at least one item")

    resolved = []
    for index, item in enumerate(items, start=1):
        if not item.description or not item.description.strip():
            raise ValidationError(f"Item {index}: description is required")
        quantity = to_quantity(item.quantity)
        price = to_quantity(item.price)
        if quantity <= 0:
            raise ValidationError(f"Item {index}: quantity must be positive, got {quantity}")
        if price < 0:
            raise ValidationError(f"Item {index}: price must not be negative, got {price}")
        amount = to_money(item.amount) if item.amount is not None else round_money(quantity * price)
        if amount < 0:
            raise ValidationError(f"Item {index}: amount must not be negative, got {amount}")
        resolved.append(
            InvoiceItemInput(
                description=item.description.strip(),
                quantity=quantity,
                price=price,
                taxable=item.taxable,
                amount=amount,
            )
        )

    subtotal = sum((item.amount for item in resolved), Decimal("0.00"))
    taxable = sum((item.amount for item in resolved if item.taxable), Decimal("0.00"))
    tax_amount = round_money(taxable * tax_rate)
    total = subtotal + tax_amount
    # Totals are strictly positive
    if total <= 0:
        raise ValidationError(f"Invoice total must be positive, got {total}")
    return resolved, subtotal, tax_amount, total


class InvoiceService:
    """Service for the invoice lifecycle."""

    def __init__(self, db: Database):
        """Initialize invoice service.

        Args:
            db: Database instance
        """
        self.db = db

    def _next_invoice_number(self) -> str:
        sequence = self.db.count_invoices() + 1
        number = INVOICE_NUMBER_FORMAT.format(sequence)
        while self.db.get_invoice_by_number(number) is not None:
            sequence += 1
            number = INVOICE_NUMBER_FORMAT.format(sequence)
        return number

    def create_invoice(
        self,
        customer_id: str,
        items: Sequence[InvoiceItemInput],
        due_date: date,
        tax_rate: Decimal | int | str = 0,
        invoice_date: Optional[date] = None,
        invoice_number: Optional[str] = None,
        notes: Optional[str] = None,
        terms: Optional[str] = None,
    ) -> int:
        """Create a DRAFT invoice.

        Args:
            customer_id: Customer identifier
            items: Line items
            due_date: Payment due date
            tax_rate: Tax rate as a fraction (0.07 for 7%)
            invoice_date: Invoice date, defaults to today
            invoice_number: Invoice number, generated as INV-00001... when omitted
            notes: Optional notes
            terms: Optional payment terms

        Returns:
            Invoice ID

        Raises:
            ValidationError: If items, tax rate or dates are invalid
            DuplicateError: If invoice_number is already used
        """
        if not customer_id or not str(customer_id).strip():
            raise ValidationError("Customer is required")
        invoice_date = invoice_date or date.today()
        if due_date < invoice_date:
            raise ValidationError(f"Due date {due_date} is before invoice date {invoice_date}")

        rate = to_rate(tax_rate)
        resolved, subtotal, tax_amount, total = calculate_totals(items, rate)

        if invoice_number is None:
            invoice_number = self._next_invoice_number()
        elif self.db.get_invoice_by_number(invoice_number) is not None:
            raise DuplicateError(f"Invoice number '{invoice_number}' already exists")

        invoice_id = self.db.create_invoice(
            invoice_number=invoice_number,
            customer_id=str(customer_id).strip(),
            invoice_date=invoice_date,
            due_date=due_date,
            items=resolved,
            tax_rate=rate,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total=total,
            notes=notes,
            terms=terms,
        )
        logger.info("Created invoice %s (%s) total %s", invoice_id, invoice_number, total)
        return invoice_id

    def get_invoice(self, invoice_id: int) -> Optional[InvoiceEntity]:
        """Get invoice by ID.

        Args:
            invoice_id: Invoice ID

        Returns:
            Invoice entity or None if not found
        """
        return self.db.get_invoice(invoice_id)

    def require_invoice(self, invoice_id: int) -> InvoiceEntity:
        """Get invoice by ID or raise NotFoundError."""
        invoice = self.db.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError(invoice_not_found(invoice_id))
        return invoice

    def list_invoices(
        self,
        status: Optional[InvoiceStatus | str] = None,
        customer_id: Optional[str] = None,
    ) -> list[InvoiceEntity]:
        """List invoices, newest first.

        Args:
            status: Only invoices in this status
            customer_id: Only invoices for this customer
        """
        statuses = None
        if status is not None:
            try:
                statuses = [InvoiceStatus(status.upper() if isinstance(status, str) else status)]
            except ValueError as e:
                raise ValidationError(f"Unknown invoice status '{status}'") from e
        return self.db.list_invoices(statuses=statuses, customer_id=customer_id)

    def list_payments(self, invoice_id: int) -> list[PaymentEntity]:
        """List payments recorded against an invoice, oldest first."""
        self.require_invoice(invoice_id)
        return self.db.list_payments(invoice_id)

    def update_items(
        self,
        invoice_id: int,
        items: Sequence[InvoiceItemInput],
        tax_rate: Optional[Decimal | int | str] = None,
    ) -> None:
        """Replace the items of a DRAFT invoice and recompute its totals.

        Raises:
            NotFoundError: If invoice not found
            InvalidTransitionError: If the invoice is no longer a draft
            ValidationError: If items or tax rate are invalid
        """
        invoice = self.require_invoice(invoice_id)
        if invoice.status != InvoiceStatus.DRAFT:
            raise InvalidTransitionError(invalid_transition(invoice_id, invoice.status.value, "edit items of"))

        rate = invoice.tax_rate if tax_rate is None else to_rate(tax_rate)
        resolved, subtotal, tax_amount, total = calculate_totals(items, rate)
        self.db.replace_invoice_items(
            invoice_id,
            expected_version=invoice.version,
            items=resolved,
            tax_rate=rate,
            subtotal=subtotal,
            tax_amount=tax_amount,
            total=total,
        )
        logger.info("Updated items of invoice %s, new total %s", invoice_id, total)

    def send_invoice(self, invoice_id: int) -> None:
        """Move a DRAFT invoice to SENT.

        Raises:
            NotFoundError: If invoice not found
            InvalidTransitionError: If the invoice is not a draft
        """
        invoice = self.require_invoice(invoice_id)
        if invoice.status != InvoiceStatus.DRAFT:
            logger.warning("Refused to send invoice %s in status %s", invoice_id, invoice.status.value)
            raise InvalidTransitionError(invalid_transition(invoice_id, invoice.status.value, "send"))
        self.db.update_invoice_status(invoice_id, invoice.version, InvoiceStatus.SENT)
        logger.info("Sent invoice %s", invoice_id)

    def record_payment(
        self,
        invoice_id: int,
        amount: Decimal | int | str,
        payment_date: Optional[date] = None,
        method: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> int:
        """Record a payment against a SENT, PARTIALLY_PAID or OVERDUE invoice.

        The payment row, the new amount paid and the new status are stored
        together.

        Args:
            invoice_id: Invoice ID
            amount: Payment amount, positive and in whole cents
            payment_date: Payment date, defaults to today
            method: Optional payment method
            notes: Optional notes

        Returns:
            Payment ID

        Raises:
            NotFoundError: If invoice not found
            InvalidTransitionError: If the invoice cannot take payments in its status
            ValidationError: If the amount is not positive
            OverpaymentRejectedError: If the payment exceeds the balance due
        """
        invoice = self.require_invoice(invoice_id)
        if invoice.status not in PAYABLE_STATUSES:
            logger.warning("Refused payment on invoice %s in status %s", invoice_id, invoice.status.value)
            raise InvalidTransitionError(
                invalid_transition(invoice_id, invoice.status.value, "record a payment on")
            )

        amount = to_money(amount)
        if amount <= 0:
            raise ValidationError(f"Payment amount must be positive, got {amount}")

        amount_paid = invoice.amount_paid + amount
        if amount_paid > invoice.total:
            logger.warning(
                "Rejected overpayment of %s on invoice %s (balance due %s)", amount, invoice_id, invoice.balance_due
            )
            raise OverpaymentRejectedError(
                f"Payment of {amount} exceeds balance due {invoice.balance_due} on invoice {invoice.invoice_number}"
            )

        status = InvoiceStatus.PAID if amount_paid == invoice.total else InvoiceStatus.PARTIALLY_PAID
        payment_id = self.db.add_invoice_payment(
            invoice_id,
            expected_version=invoice.version,
            amount=amount,
            payment_date=payment_date or date.today(),
            amount_paid=amount_paid,
            status=status,
            method=method,
            notes=notes,
        )
        logger.info("Recorded payment %s of %s on invoice %s, now %s", payment_id, amount, invoice_id, status.value)
        return payment_id

    def mark_overdue(self, invoice_id: int, now: date | datetime) -> bool:
        """Mark a SENT or PARTIALLY_PAID invoice OVERDUE once now is past its due date.

        Calling it again, or on an invoice in any other status, changes nothing.

        Returns:
            True if the invoice was marked overdue

        Raises:
            NotFoundError: If invoice not found
        """
        invoice = self.require_invoice(invoice_id)
        if invoice.status not in OVERDUE_CANDIDATES or as_date(now) <= invoice.due_date:
            return False
        self.db.update_invoice_status(invoice_id, invoice.version, InvoiceStatus.OVERDUE)
        logger.info("Invoice %s is overdue (due %s)", invoice_id, invoice.due_date)
        return True

    def sweep_overdue(self, now: date | datetime) -> list[int]:
        """Apply mark_overdue to every open invoice.

        An invoice changed by another writer during the sweep is skipped and
        left for the next sweep.

        Returns:
            IDs of invoices marked overdue by this sweep
        """
        marked = []
        for invoice in self.db.list_invoices(statuses=OVERDUE_CANDIDATES):
            try:
                if self.mark_overdue(invoice.id, now):
                    marked.append(invoice.id)
            except ConflictError as e:
                logger.warning("Skipped invoice %s in overdue sweep: %s", invoice.id, e)
        logger.info("Overdue sweep as of %s marked %d invoice(s)", as_date(now), len(marked))
        return marked

    def cancel_invoice(self, invoice_id: int) -> None:
        """Cancel an invoice that is not PAID. Cancelling twice changes nothing.

        Raises:
            NotFoundError: If invoice not found
            InvalidTransitionError: If the invoice is PAID
        """
        invoice = self.require_invoice(invoice_id)
        if invoice.status == InvoiceStatus.CANCELLED:
            return
        if invoice.status == InvoiceStatus.PAID:
            logger.warning("Refused to cancel paid invoice %s", invoice_id)
            raise InvalidTransitionError(invalid_transition(invoice_id, invoice.status.value, "cancel"))
        self.db.update_invoice_status(invoice_id, invoice.version, InvoiceStatus.CANCELLED)
        logger.info("Cancelled invoice %s", invoice_id)

    def delete_invoice(self, invoice_id: int) -> None:
        """Delete a DRAFT or CANCELLED invoice that has no payments.

        Raises:
            NotFoundError: If invoice not found
            InvalidTransitionError: If the invoice is in another status or has payments
        """
        invoice = self.require_invoice(invoice_id)
        if invoice.status not in (InvoiceStatus.DRAFT, InvoiceStatus.CANCELLED) or invoice.amount_paid > 0:
            raise InvalidTransitionError(invalid_transition(invoice_id, invoice.status.value, "delete"))
        self.db.delete_invoice(invoice_id, invoice.version)
        logger.info("Deleted invoice %s", invoice_id)
