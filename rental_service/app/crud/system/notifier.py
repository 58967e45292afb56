"""
Best-effort side channel for lifecycle and payment events.

Called only after the business transaction has committed. The in-app row is
written immediately; emails are queued on the request's BackgroundTasks and
sent after the response. Every failure here is logged and swallowed; a
notification can never undo or fail the operation that triggered it.
"""

import logging
from typing import Iterable, Optional

from fastapi import BackgroundTasks
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.helpers.email_helper import EmailHelper
from shared.utils.money import format_cents
from ...enum.rental_enum import NotificationPriority, NotificationType
from ...models.payments import Payment
from ...models.rental_contracts import RentalContract
from . import notifications_crud

logger = logging.getLogger(__name__)


class Notifier:

    def __init__(self, db: Session, background_tasks: Optional[BackgroundTasks] = None,
                 email_helper: Optional[EmailHelper] = None):
        self.db = db
        # without a request to attach to (scripts, shell) mail goes out inline
        self.background_tasks = background_tasks
        self.email_helper = email_helper or EmailHelper()

    def _in_app(self, user_id, type: NotificationType, title: str, message: str,
                priority: NotificationPriority = NotificationPriority.MEDIUM,
                link: Optional[str] = None, extra: Optional[dict] = None):
        if not user_id:
            return
        try:
            notifications_crud.create_notification(
                self.db, user_id, type, title, message, priority, link, extra)
        except Exception:
            logger.exception(f"Failed to store notification '{title}' for user {user_id}")

    def _deliver(self, template_code: str, recipients: list, subject: str, context: dict):
        try:
            self.email_helper.send_email(template_code, recipients, subject, context)
        except Exception:
            logger.exception(f"Failed to send '{template_code}' email")

    def _email(self, template_code: str, recipients: Iterable[Optional[str]], subject: str, context: dict):
        if self.background_tasks is None:
            self._deliver(template_code, list(recipients), subject, context)
            return
        self.background_tasks.add_task(
            self._deliver,
            template_code=template_code,
            recipients=list(recipients),
            subject=subject,
            context=context,
        )

    @staticmethod
    def _contract_context(contract: RentalContract) -> dict:
        return {
            "driver_name": contract.driver.full_name if contract.driver else "driver",
            "vehicle_reg": contract.vehicle.reg if contract.vehicle else "-",
            "fee": format_cents(contract.fee_amount_cents),
            "frequency": contract.frequency.lower(),
        }

    def contract_sent(self, contract: RentalContract):
        context = self._contract_context(contract)
        self._in_app(
            contract.driver.user_id,
            NotificationType.CONTRACT,
            "Contract ready to sign",
            f"Your rental contract for {context['vehicle_reg']} is ready for your signature.",
            link="/driver/contract",
        )
        self._email("contract_sent", [contract.driver.email],
                    "Your rental contract is ready to sign", context)

    def contract_activated(self, contract: RentalContract, first_payment: Payment):
        context = self._contract_context(contract)
        context["first_due_date"] = first_payment.due_date.isoformat()
        self._in_app(
            contract.driver.user_id,
            NotificationType.CONTRACT,
            "Contract active",
            f"Your contract for {context['vehicle_reg']} is active. "
            f"First payment of {context['fee']} due {context['first_due_date']}.",
            priority=NotificationPriority.HIGH,
            link="/driver/payments",
        )
        self._email("contract_activated", [contract.driver.email],
                    "Your rental contract is active", context)

    def contract_cancelled(self, contract: RentalContract):
        context = self._contract_context(contract)
        context["reason"] = contract.cancellation_reason or ""
        self._in_app(
            contract.driver.user_id,
            NotificationType.CONTRACT,
            "Contract cancelled",
            f"Your contract for {context['vehicle_reg']} was cancelled.",
        )
        self._email("contract_cancelled", [contract.driver.email],
                    "Your rental contract was cancelled", context)

    def payment_received(self, payment: Payment):
        contract = payment.contract
        context = self._contract_context(contract)
        context.update(amount=format_cents(payment.amount_cents),
                       due_date=payment.due_date.isoformat())
        self._in_app(
            contract.driver.user_id,
            NotificationType.PAYMENT,
            "Payment received",
            f"Payment of {context['amount']} due {context['due_date']} received.",
            priority=NotificationPriority.LOW,
        )
        self._email("payment_received", [contract.driver.email],
                    "Payment received", context)

    def payment_overdue(self, payment: Payment):
        contract = payment.contract
        context = self._contract_context(contract)
        context.update(amount=format_cents(payment.amount_cents),
                       due_date=payment.due_date.isoformat())
        self._in_app(
            settings.ADMIN_USER_ID,
            NotificationType.PAYMENT,
            "Payment overdue",
            f"{context['driver_name']} ({context['vehicle_reg']}): "
            f"{context['amount']} due {context['due_date']} is overdue.",
            priority=NotificationPriority.URGENT,
            link="/admin/payments?status=OVERDUE",
            extra={"payment_id": str(payment.id), "contract_id": str(contract.id)},
        )
        self._email("payment_overdue", [settings.ADMIN_EMAIL],
                    "Payment overdue", context)
