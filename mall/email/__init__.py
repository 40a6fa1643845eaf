import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from fastapi import BackgroundTasks
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pydantic import EmailStr

from mall.configuration.settings import Configuration
from mall.helpers.order.formatters import format_currency, format_order_date
from mall.models.order.order import Order

configuration = Configuration()


class EmailService:
    def __init__(self, smtp_host: Optional[str] = None, smtp_port: Optional[int] = None):
        self.email_user = configuration.email_user
        self.email_password = configuration.email_password
        self.smtp_host = smtp_host or configuration.smtp_host
        self.smtp_port = smtp_port or configuration.smtp_port
        self.template_env = Environment(
            loader=FileSystemLoader(os.path.join(os.path.dirname(__file__), "templates")),
            autoescape=select_autoescape(["html"]),
        )
        self.template_env.filters["currency"] = format_currency
        self.template_env.filters["order_date"] = format_order_date

    @property
    def enabled(self) -> bool:
        return bool(self.email_user and self.email_password)

    def send_email(self, to_email: EmailStr, subject: str, html_content: str, background_tasks: BackgroundTasks = None):
        def send_email_task():
            if not self.enabled:
                logging.warning(f"EMAIL >>> SMTP credentials not set, skipping '{subject}' to {to_email}")
                return

            try:
                msg = MIMEMultipart()
                msg["From"] = self.email_user
                msg["To"] = to_email
                msg["Subject"] = subject

                msg.attach(MIMEText(html_content, "html"))

                with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                    server.starttls()
                    server.login(self.email_user, self.email_password)
                    server.sendmail(self.email_user, to_email, msg.as_string())

                logging.info(f"EMAIL >>> Sent '{subject}' to {to_email}")
            except (smtplib.SMTPException, OSError) as e:
                logging.error(f"EMAIL >>> Failed to send '{subject}' to {to_email} -> {e}")

        if background_tasks:
            background_tasks.add_task(send_email_task)
        else:
            send_email_task()

    def render_template(self, template_name: str, **kwargs):
        template = self.template_env.get_template(template_name)
        return template.render(**kwargs)

    def send_order_confirmation_email(
        self,
        email: EmailStr,
        customer_name: Optional[str],
        orders: List[Order],
        background_tasks: BackgroundTasks = None,
    ):
        if not orders:
            return

        subject = "Order Confirmation"
        if len(orders) == 1:
            subject = f"Order Confirmation #{orders[0].code}"

        html_content = self.render_template(
            "order_confirmation.html",
            customer_name=customer_name or "there",
            orders=orders,
            grand_total=sum(order.total_amount for order in orders),
            app_base_url=configuration.app_base_url,
        )
        self.send_email(email, subject, html_content, background_tasks)


email_service = EmailService()
