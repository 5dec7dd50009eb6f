"""Mapper functions to convert SQLAlchemy models into domain entities.

This is the single place where loosely-typed store rows are validated and
normalized: legacy expenses without a status become executed, income rows
never carry expense-only fields, and amounts are quantized to cents.
"""

from decimal import Decimal

from ledgerbook.domain import entities as domain
from ledgerbook.domain.errors import StoreError
from ledgerbook.database.models import (
    User as ORMUser,
    Account as ORMAccount,
    Category as ORMCategory,
    Transaction as ORMTransaction,
    Attachment as ORMAttachment,
)
from ledgerbook.utils.amount_parser import quantize_amount


def _kind(value: str, operation: str) -> domain.TransactionKind:
    try:
        return domain.TransactionKind(value)
    except ValueError:
        raise StoreError(operation, f"unknown transaction kind '{value}'")


def user_to_domain(orm_user: ORMUser) -> domain.User:
    """Convert SQLAlchemy User model to domain User entity."""
    try:
        role = domain.UserRole(orm_user.role)
    except ValueError:
        raise StoreError("read user", f"unknown role '{orm_user.role}'")
    return domain.User(
        id=orm_user.id,
        name=orm_user.name,
        role=role,
        created_at=orm_user.created_at,
    )


def account_to_domain(orm_account: ORMAccount) -> domain.Account:
    """Convert SQLAlchemy Account model to domain Account entity."""
    return domain.Account(
        id=orm_account.id,
        name=orm_account.name,
        active=bool(orm_account.active),
        created_at=orm_account.created_at,
    )


def category_to_domain(orm_category: ORMCategory) -> domain.Category:
    """Convert SQLAlchemy Category model to domain Category entity."""
    return domain.Category(
        id=orm_category.id,
        name=orm_category.name,
        kind=_kind(orm_category.kind, "read category"),
        active=bool(orm_category.active),
        created_at=orm_category.created_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    kind = _kind(orm_transaction.kind, "read transaction")

    if kind == domain.TransactionKind.INCOME:
        status = None
        executed_at = None
        doc_no = None
    else:
        raw_status = orm_transaction.expense_status
        try:
            status = domain.ExpenseStatus(raw_status) if raw_status else domain.ExpenseStatus.EXECUTED
        except ValueError:
            raise StoreError("read transaction", f"unknown expense status '{raw_status}'")
        executed_at = orm_transaction.executed_at
        doc_no = orm_transaction.expense_doc_no

    return domain.Transaction(
        id=orm_transaction.id,
        date=orm_transaction.date,
        kind=kind,
        description=orm_transaction.description,
        amount=quantize_amount(Decimal(orm_transaction.amount)),
        payment_method=orm_transaction.payment_method,
        category_id=orm_transaction.category_id,
        account_id=orm_transaction.account_id,
        created_by=orm_transaction.created_by,
        expense_status=status,
        executed_at=executed_at,
        expense_doc_no=doc_no,
        created_at=orm_transaction.created_at,
    )


def new_transaction_to_orm(values: domain.NewTransaction) -> ORMTransaction:
    """Build an ORM row from a validated NewTransaction."""
    orm_transaction = ORMTransaction(created_by=values.created_by)
    apply_transaction_values(orm_transaction, values)
    return orm_transaction


def apply_transaction_values(orm_transaction: ORMTransaction, values: domain.NewTransaction) -> None:
    """Copy the editable fields of a NewTransaction onto an ORM row."""
    is_income = values.kind == domain.TransactionKind.INCOME
    orm_transaction.date = values.date
    orm_transaction.kind = values.kind.value
    orm_transaction.description = values.description
    orm_transaction.amount = values.amount
    orm_transaction.payment_method = values.payment_method
    orm_transaction.category_id = values.category_id
    orm_transaction.account_id = values.account_id
    orm_transaction.expense_status = (
        None if is_income or values.expense_status is None else values.expense_status.value
    )
    orm_transaction.executed_at = None if is_income else values.executed_at
    orm_transaction.expense_doc_no = None if is_income else values.expense_doc_no


def attachment_to_domain(orm_attachment: ORMAttachment) -> domain.Attachment:
    """Convert SQLAlchemy Attachment model to domain Attachment entity."""
    return domain.Attachment(
        id=orm_attachment.id,
        transaction_id=orm_attachment.transaction_id,
        storage_path=orm_attachment.storage_path,
        external_url=orm_attachment.external_url,
        original_name=orm_attachment.original_name,
        mime_type=orm_attachment.mime_type,
        size_bytes=orm_attachment.size_bytes,
        created_at=orm_attachment.created_at,
    )
