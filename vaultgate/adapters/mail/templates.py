"""HTML email templates."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape

_BG = "#0f0d16"
_CARD = "#141221"
_TEXT = "#e9e7f5"
_MUTED = "#a39fbf"
_PRIMARY = "#7c6cf6"
_BORDER = "#201b34"


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


def _layout(subject: str, content_html: str, *, product_name: str, support_email: str | None, support_name: str | None) -> str:
    footer = ""
    if support_email:
        safe_email = escape(support_email)
        footer = (
            f'<div>Need help? <a href="mailto:{safe_email}" '
            f'style="color:{_PRIMARY};text-decoration:none;">{safe_email}</a></div>'
        )
    if support_name:
        footer += f'<div style="margin-top:4px;">{escape(support_name)}</div>'

    return (
        f'<div style="margin:0;padding:24px;background:{_BG};color:{_TEXT};'
        'font-family:Inter,system-ui,-apple-system,Segoe UI,Roboto,sans-serif;">'
        f'<table role="presentation" width="100%" cellpadding="0" cellspacing="0" '
        f'style="max-width:640px;margin:0 auto;background:{_CARD};border-radius:12px;'
        f'overflow:hidden;border:1px solid {_BORDER};">'
        f'<thead><tr><td style="padding:20px 24px;border-bottom:1px solid {_BORDER};">'
        f'<div style="font-weight:700;font-size:18px;">{escape(product_name)}</div>'
        f'<div style="font-size:12px;color:{_MUTED};margin-top:4px;">{escape(subject)}</div>'
        "</td></tr></thead>"
        f'<tbody><tr><td style="padding:24px;line-height:1.6;color:{_TEXT};">{content_html}</td></tr></tbody>'
        f'<tfoot><tr><td style="padding:16px 24px;border-top:1px solid {_BORDER};color:{_MUTED};font-size:12px;">'
        f"{footer}</td></tr></tfoot>"
        "</table></div>"
    )


def render_limit_reached(
    limit_name: str,
    details: str | None = None,
    *,
    product_name: str = "Vault",
    support_email: str | None = None,
    support_name: str | None = None,
) -> RenderedEmail:
    """Render the "you've hit a limit" message.

    Args:
        limit_name: Human name of the limit (e.g. "Daily upload quota").
        details: Optional used/ceiling sentence.
        product_name: Brand shown in the header.
        support_email: Contact address for the footer.
        support_name: Signature for the footer.

    Returns:
        RenderedEmail with subject, HTML and plain-text bodies.
    """

    subject = f"Limit reached: {limit_name}"
    parts = [
        '<h3 style="margin:0 0 12px">You\'ve hit a limit</h3>',
        f'<p style="margin:0 0 12px">You\'ve reached the <strong>{escape(limit_name)}</strong> '
        "for your account.</p>",
    ]
    text_lines = [f"You've reached the {limit_name} for your account."]
    if details:
        parts.append(f'<p style="margin:0 0 12px">{escape(details)}</p>')
        text_lines.append(details)
    parts.append(
        '<p style="margin:0">You can free up space by deleting old files '
        "or wait until your daily quota resets.</p>"
    )
    text_lines.append("You can free up space by deleting old files or wait until your daily quota resets.")
    if support_email:
        text_lines.append(f"Need help? Contact {support_email}.")

    html = _layout(
        subject,
        "".join(parts),
        product_name=product_name,
        support_email=support_email,
        support_name=support_name,
    )
    return RenderedEmail(subject=subject, html=html, text="\n\n".join(text_lines))
