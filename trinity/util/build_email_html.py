# -*- coding: utf-8 -*-
"""
# @Time    : 2025/12/06 19:45
# @Author  : Pedro
# @File    : build_email_html.py
# @Software: PyCharm
"""
from html import escape
from typing import Any, Callable, Dict


def _layout(brand: str, title: str, body: str) -> str:
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <title>{escape(title)}</title>
  <style>
    body {{ background:#f4f4f4; font-family: Arial, Helvetica, sans-serif; margin:0; padding:0; color:#333; }}
    .wrap {{ max-width:600px; margin:36px auto; background:#ffffff; border-radius:8px; overflow:hidden; }}
    .hdr {{ background:#2b7a9e; color:#fff; text-align:center; padding:22px 16px; font-size:20px; font-weight:600; }}
    .body {{ padding:20px 22px; line-height:1.6; font-size:15px; color:#333; }}
    .row {{ margin:4px 0; }}
    .footer {{ background:#fafafa; color:#777; font-size:12px; padding:14px 18px; text-align:center; }}
  </style>
</head>
<body>
  <div class="wrap" role="article" aria-roledescription="email">
    <div class="hdr">{escape(brand)}</div>
    <div class="body">
{body}
    </div>
    <div class="footer">{escape(brand)}, wallet notifications</div>
  </div>
</body>
</html>
"""


def _row(label: str, value: Any) -> str:
    return f'      <div class="row"><strong>{escape(label)}:</strong> {escape(str(value))}</div>'


def build_manual_deposit_email(brand: str, data: Dict[str, Any]) -> str:
    """
    ✉️ 后台手工充值到账通知
    --------------------------------------------------
    data: fullName, amount, currency, network, newBalance, adminNotes
    """
    body = "\n".join([
        f"      <p>Hi <strong>{escape(str(data.get('fullName', '')))}</strong>,</p>",
        "      <p>A deposit has been credited to your wallet by our team.</p>",
        _row("Amount", f"{data.get('amount')} {data.get('currency')}"),
        _row("Network", data.get("network")),
        _row("New balance", data.get("newBalance")),
        _row("Notes", data.get("adminNotes") or "-"),
    ])
    return _layout(brand, "Manual Deposit Confirmed", body)


def build_deposit_cancelled_email(brand: str, data: Dict[str, Any]) -> str:
    """
    ✉️ 充值撤销通知
    --------------------------------------------------
    data: fullName, amount, currency, reason, refundAmount, newBalance
    """
    body = "\n".join([
        f"      <p>Hi <strong>{escape(str(data.get('fullName', '')))}</strong>,</p>",
        "      <p>A deposit on your account has been cancelled.</p>",
        _row("Amount", f"{data.get('amount')} {data.get('currency')}"),
        _row("Reason", data.get("reason")),
        _row("Refunded", data.get("refundAmount")),
        _row("New balance", data.get("newBalance")),
    ])
    return _layout(brand, "Deposit Cancelled", body)


TEMPLATES: Dict[str, Callable[[str, Dict[str, Any]], str]] = {
    "manual-deposit-confirmation": build_manual_deposit_email,
    "deposit-cancelled": build_deposit_cancelled_email,
}


def render_template(template: str, brand: str, data: Dict[str, Any]) -> str:
    builder = TEMPLATES.get(template)
    if builder is None:
        raise KeyError(f"Unknown email template: {template}")
    return builder(brand, data)
