from typing import Dict, Optional
from sqlalchemy.orm import Session

from shared.core.database import transaction
from ...models.app_settings import AppSetting
from ...schemas.settings_schemas import PaymentSettingsOut, PaymentSettingsUpdate
from ..payments.payment_ledger import LedgerConfig

AUTO_GENERATE_NEXT = "payments.autoGenerateNext"
GRACE_PERIOD_DAYS = "payments.gracePeriodDays"
BACKFILL_CYCLES = "payments.backfillCycles"
DEFAULT_DUE_WEEKDAY = "payments.defaultDueWeekday"
DEFAULT_DUE_DAY = "payments.defaultDueDay"
CURRENCY = "payments.currency"

PAYMENT_SETTING_KEYS = {
    "auto_generate_next": AUTO_GENERATE_NEXT,
    "grace_period_days": GRACE_PERIOD_DAYS,
    "backfill_cycles": BACKFILL_CYCLES,
    "default_due_weekday": DEFAULT_DUE_WEEKDAY,
    "default_due_day": DEFAULT_DUE_DAY,
    "currency": CURRENCY,
}


def get_setting(db: Session, key: str, fallback: str = "") -> str:
    row = db.get(AppSetting, key)
    return row.value if row else fallback


def get_setting_int(db: Session, key: str, fallback: Optional[int]) -> Optional[int]:
    raw = get_setting(db, key, "")
    try:
        return int(raw)
    except ValueError:
        return fallback


def get_setting_bool(db: Session, key: str, fallback: bool) -> bool:
    raw = get_setting(db, key, "")
    if not raw:
        return fallback
    return raw.lower() == "true"


def set_settings(db: Session, pairs: Dict[str, str]) -> None:
    for key, value in pairs.items():
        db.merge(AppSetting(key=key, value=str(value)))
    db.flush()


def get_ledger_config(db: Session) -> LedgerConfig:
    defaults = LedgerConfig()
    return LedgerConfig(
        auto_generate_next=get_setting_bool(
            db, AUTO_GENERATE_NEXT, defaults.auto_generate_next),
        grace_period_days=get_setting_int(
            db, GRACE_PERIOD_DAYS, defaults.grace_period_days),
        backfill_cycles=get_setting_int(
            db, BACKFILL_CYCLES, defaults.backfill_cycles),
    )


def get_payment_settings(db: Session) -> PaymentSettingsOut:
    config = get_ledger_config(db)
    return PaymentSettingsOut(
        auto_generate_next=config.auto_generate_next,
        grace_period_days=config.grace_period_days,
        backfill_cycles=config.backfill_cycles,
        default_due_weekday=get_setting_int(db, DEFAULT_DUE_WEEKDAY, None),
        default_due_day=get_setting_int(db, DEFAULT_DUE_DAY, None),
        currency=get_setting(db, CURRENCY, "ZAR"),
    )


def update_payment_settings(db: Session, payload: PaymentSettingsUpdate) -> PaymentSettingsOut:
    data = payload.model_dump(exclude_unset=True)
    pairs = {}
    for field, value in data.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        pairs[PAYMENT_SETTING_KEYS[field]] = value

    with transaction(db):
        set_settings(db, pairs)
    return get_payment_settings(db)
