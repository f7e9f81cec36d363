"""Invoice commands."""

from datetime import timedelta

import click
from finstream.cli.entry_parsing import parse_item
from finstream.cli.error_handling import handle_domain_error
from finstream.domain.entities import InvoiceStatus
from finstream.domain.invoice import InvoiceService
from finstream.utils.amount_parser import parse_amount
from finstream.utils.date_parser import parse_date


@click.group()
def invoice_group():
    """Issue invoices and record payments."""
    pass


def _parse_date_or_exit(ctx, value: str, label: str = "date"):
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


@invoice_group.command("create")
@click.option("--customer", required=True, help="Customer identifier")
@click.option(
    "--item",
    "items",
    multiple=True,
    required=True,
    help="Line item as DESCRIPTION|QUANTITY|PRICE[|notax]. Repeat for each item.",
)
@click.option("--date", "invoice_date", default="today", show_default=True, help="Invoice date")
@click.option("--due", "due_date", help="Due date (defaults to 30 days after the invoice date)")
@click.option("--tax-rate", default="0", show_default=True, help="Tax rate as a fraction, e.g. 0.07 for 7%")
@click.option("--number", "invoice_number", help="Invoice number (generated when omitted)")
@click.option("--notes", help="Notes shown on the invoice")
@click.option("--terms", help="Payment terms")
@click.pass_context
def create_invoice(
    ctx,
    customer: str,
    items: tuple[str, ...],
    invoice_date: str,
    due_date: str | None,
    tax_rate: str,
    invoice_number: str | None,
    notes: str | None,
    terms: str | None,
):
    """Create a draft invoice.

    Examples:
        finstream invoice create --customer ACME --item "Consulting|10|85.00" --tax-rate 0.07
        finstream invoice create --customer ACME --item "Setup fee|1|250|notax" --due "in 14 days"
    """
    db = ctx.obj["db"]
    service = InvoiceService(db)

    parsed_date = _parse_date_or_exit(ctx, invoice_date, "invoice date")
    parsed_due = _parse_date_or_exit(ctx, due_date, "due date") if due_date else parsed_date + timedelta(days=30)
    parsed_items = [parse_item(ctx, text) for text in items]

    try:
        invoice_id = service.create_invoice(
            customer_id=customer,
            items=parsed_items,
            due_date=parsed_due,
            tax_rate=tax_rate,
            invoice_date=parsed_date,
            invoice_number=invoice_number,
            notes=notes,
            terms=terms,
        )
        invoice = service.require_invoice(invoice_id)
        click.echo(f"Created invoice {invoice.invoice_number} (ID: {invoice_id}) total {invoice.total:,.2f}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("send")
@click.argument("invoice_id", type=int)
@click.pass_context
def send_invoice(ctx, invoice_id: int):
    """Mark a draft invoice as sent."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        service.send_invoice(invoice_id)
        click.echo(f"Invoice {invoice_id} sent")
    except ValueError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("pay")
@click.argument("invoice_id", type=int)
@click.argument("amount")
@click.option("--date", "payment_date", default="today", show_default=True, help="Payment date")
@click.option("--method", help="Payment method (check, card, transfer)")
@click.option("--notes", help="Notes")
@click.pass_context
def record_payment(ctx, invoice_id: int, amount: str, payment_date: str, method: str | None, notes: str | None):
    """Record a payment against an invoice.

    Examples:
        finstream invoice pay 1 1000.00 --method check
    """
    db = ctx.obj["db"]
    service = InvoiceService(db)
    parsed_date = _parse_date_or_exit(ctx, payment_date, "payment date")

    try:
        service.record_payment(
            invoice_id,
            amount=parse_amount(amount),
            payment_date=parsed_date,
            method=method,
            notes=notes,
        )
        invoice = service.require_invoice(invoice_id)
        click.echo(
            f"Recorded payment on invoice {invoice.invoice_number}: "
            f"paid {invoice.amount_paid:,.2f} of {invoice.total:,.2f} ({invoice.status.value})"
        )
    except ValueError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("cancel")
@click.argument("invoice_id", type=int)
@click.pass_context
def cancel_invoice(ctx, invoice_id: int):
    """Cancel an invoice that is not paid."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        service.cancel_invoice(invoice_id)
        click.echo(f"Invoice {invoice_id} cancelled")
    except ValueError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("delete")
@click.argument("invoice_id", type=int)
@click.pass_context
def delete_invoice(ctx, invoice_id: int):
    """Delete a draft or cancelled invoice without payments."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        service.delete_invoice(invoice_id)
        click.echo(f"Deleted invoice {invoice_id}")
    except ValueError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("show")
@click.argument("invoice_id", type=int)
@click.pass_context
def show_invoice(ctx, invoice_id: int):
    """Show an invoice with its items and payments."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    try:
        invoice = service.require_invoice(invoice_id)
        payments = service.list_payments(invoice_id)
    except ValueError as e:
        handle_domain_error(ctx, e)

    click.echo(f"\nInvoice {invoice.invoice_number} (ID: {invoice.id})")
    click.echo(f"  Customer: {invoice.customer_id}")
    click.echo(f"  Date: {invoice.date}  Due: {invoice.due_date}")
    click.echo(f"  Status: {invoice.status.value}")
    click.echo("  Items:")
    for item in invoice.items:
        tax_flag = "" if item.taxable else " (no tax)"
        click.echo(
            f"    {item.description[:36]:36s} {item.quantity:>10} x {item.price:>10,.2f} "
            f"= {item.amount:>12,.2f}{tax_flag}"
        )
    click.echo(f"  Subtotal: {invoice.subtotal:>12,.2f}")
    click.echo(f"  Tax:      {invoice.tax_amount:>12,.2f}")
    click.echo(f"  Total:    {invoice.total:>12,.2f}")
    click.echo(f"  Paid:     {invoice.amount_paid:>12,.2f}")
    click.echo(f"  Due:      {invoice.balance_due:>12,.2f}")
    if payments:
        click.echo("  Payments:")
        for payment in payments:
            method = f" via {payment.method}" if payment.method else ""
            click.echo(f"    {payment.date} {payment.amount:>12,.2f}{method}")
    if invoice.notes:
        click.echo(f"  Notes: {invoice.notes}")
    if invoice.terms:
        click.echo(f"  Terms: {invoice.terms}")


@invoice_group.command("list")
@click.option(
    "--status",
    type=click.Choice([s.value for s in InvoiceStatus], case_sensitive=False),
    help="Only invoices in this status",
)
@click.option("--customer", help="Only invoices for this customer")
@click.pass_context
def list_invoices(ctx, status: str | None, customer: str | None):
    """List invoices."""
    db = ctx.obj["db"]
    service = InvoiceService(db)

    invoices = service.list_invoices(status=status, customer_id=customer)
    if not invoices:
        click.echo("No invoices found.")
        return

    click.echo("\nInvoices:")
    click.echo("-" * 90)
    for inv in invoices:
        click.echo(
            f"ID: {inv.id:3d} | {inv.invoice_number:10s} | {inv.customer_id[:16]:16s} | due {inv.due_date} | "
            f"{inv.total:>12,.2f} | paid {inv.amount_paid:>12,.2f} | {inv.status.value}"
        )


@invoice_group.command("sweep-overdue")
@click.option("--as-of", "as_of", default="today", show_default=True, help="Date to compare due dates against")
@click.pass_context
def sweep_overdue(ctx, as_of: str):
    """Mark every sent or partially paid invoice past its due date as overdue.

    Meant to be run periodically, for example from cron.
    """
    db = ctx.obj["db"]
    service = InvoiceService(db)
    now = _parse_date_or_exit(ctx, as_of, "as-of date")

    try:
        marked = service.sweep_overdue(now)
    except ValueError as e:
        handle_domain_error(ctx, e)

    if not marked:
        click.echo("No invoices became overdue.")
        return
    click.echo(f"Marked {len(marked)} invoice(s) overdue: {', '.join(str(i) for i in marked)}")


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
