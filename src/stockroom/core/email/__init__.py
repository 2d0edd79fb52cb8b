"""Outbound email."""

from stockroom.core.email.mailer import ConsoleMailer, HttpMailer, Mailer, MailerDep, get_mailer


__all__ = ["ConsoleMailer", "HttpMailer", "Mailer", "MailerDep", "get_mailer"]
