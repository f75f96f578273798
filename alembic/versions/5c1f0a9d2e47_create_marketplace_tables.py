"""create marketplace tables

Revision ID: 5c1f0a9d2e47
Revises:
Create Date: 2026-10-17 10:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '5c1f0a9d2e47'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('first_name', sa.String(), nullable=False),
        sa.Column('last_name', sa.String(), nullable=False),
        sa.Column('email', sa.String(), nullable=False),
        sa.Column('password', sa.String(), nullable=False),
        sa.Column('role', sa.String(), nullable=False),
        sa.Column('can_login', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_user_email', 'user', ['email'], unique=True)

    op.create_table(
        'book',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('title', sa.String(), nullable=False),
        sa.Column('author', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=False),
        sa.Column('category', sa.String(), nullable=False),
        sa.Column('cover_image', sa.String(), nullable=False),
        sa.Column('pdf_file', sa.String(), nullable=False),
        sa.Column('price', sa.Float(), nullable=False),
        sa.Column('seller_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('tags', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_book_title', 'book', ['title'])
    op.create_index('ix_book_author', 'book', ['author'])
    op.create_index('ix_book_category', 'book', ['category'])
    op.create_index('ix_book_seller_id', 'book', ['seller_id'])
    op.create_index('ix_book_status', 'book', ['status'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('book.id'), nullable=False),
        sa.Column('buyer_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('seller_id', sa.Integer(), sa.ForeignKey('user.id'), nullable=False),
        sa.Column('amount', sa.Float(), nullable=False),
        sa.Column('currency', sa.String(), nullable=False),
        sa.Column('status', sa.String(), nullable=False),
        sa.Column('payment_method', sa.String(), nullable=False),
        sa.Column('payment_id', sa.String(), nullable=False),
        sa.Column('receipt_url', sa.String(), nullable=True),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_transactions_book_id', 'transactions', ['book_id'])
    op.create_index('ix_transactions_buyer_id', 'transactions', ['buyer_id'])
    op.create_index('ix_transactions_seller_id', 'transactions', ['seller_id'])
    op.create_index('ix_transactions_status', 'transactions', ['status'])
    op.create_index('ix_transactions_created_at', 'transactions', ['created_at'])
    op.create_index('ix_transactions_payment_id', 'transactions', ['payment_id'], unique=True)

    op.create_table(
        'userpurchasedbook',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), primary_key=True),
        sa.Column('book_id', sa.Integer(), sa.ForeignKey('book.id'), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )

    op.create_table(
        'usertransaction',
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id'), primary_key=True),
        sa.Column('transaction_id', sa.Integer(), sa.ForeignKey('transactions.id'), primary_key=True),
    )

    op.create_table(
        'blacklistedtoken',
        sa.Column('id', sa.Integer(), primary_key=True, nullable=False),
        sa.Column('token', sa.String(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
    )
    op.create_index('ix_blacklistedtoken_token', 'blacklistedtoken', ['token'], unique=True)
    op.create_index('ix_blacklistedtoken_expires_at', 'blacklistedtoken', ['expires_at'])


def downgrade() -> None:
    op.drop_table('blacklistedtoken')
    op.drop_table('usertransaction')
    op.drop_table('userpurchasedbook')
    op.drop_table('transactions')
    op.drop_table('book')
    op.drop_table('user')
