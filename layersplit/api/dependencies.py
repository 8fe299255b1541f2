"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from layersplit.config import Settings
from layersplit.infrastructure.clients.ledger import LedgerClient
from layersplit.infrastructure.clients.telegram import TelegramNotifier
from layersplit.infrastructure.database.session import get_db
from layersplit.infrastructure.sui.builder import SuiTransactionBuilder
from layersplit.services.directory import Directory
from layersplit.services.queries import LedgerQueries
from layersplit.services.reconciler import SettlementReconciler


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_transaction_builder(request: Request) -> SuiTransactionBuilder:
    """Provide the transaction builder configured for this deployment"""
    return request.app.state.transaction_builder


def get_notifier(request: Request) -> TelegramNotifier | None:
    """Provide the Telegram notifier, if a bot token is configured"""
    return request.app.state.notifier


def get_ledger_client(request: Request) -> LedgerClient:
    """Provide the ledger gateway client"""
    return request.app.state.ledger_client


def get_directory(db: Session = Depends(get_db)) -> Directory:
    return Directory(db)


def get_queries(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> LedgerQueries:
    return LedgerQueries(db, settings)


def get_reconciler(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    builder: SuiTransactionBuilder = Depends(get_transaction_builder),
    notifier: TelegramNotifier | None = Depends(get_notifier),
    ledger: LedgerClient = Depends(get_ledger_client),
) -> SettlementReconciler:
    return SettlementReconciler(db, builder, settings, notifier=notifier, ledger=ledger)
