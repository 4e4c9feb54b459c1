"""Design notification emails.

Delivery is not wired to a provider yet: send_email logs the message and
reports it as handled so the review workflow can run end to end.
"""
import logging
from datetime import datetime
from html import escape
from typing import Optional
from urllib.parse import quote

from configurator.integrations import shopify_client as shopify
from configurator.settings import AppSettings, load_settings

log = logging.getLogger(__name__)

EMAIL_STUB_RESULT = {"success": True, "message": "Email logged (not sent - integration needed)"}

_BOX = "padding: 20px; border-radius: 8px; margin: 20px 0;"

# status -> (subject, heading, colour, box style, intro, box title, status label, notes label,
#            follow-up, link key, link label, closing)
TEMPLATES = {
    "submitted": (
        "Design Submitted Successfully", "Design Submitted Successfully", "#333",
        "background: #f8f9fa;", "Your design has been successfully submitted and is now under review.",
        "Design Details:", "Pending Review", None,
        "We'll notify you once your design has been reviewed. This typically takes 1-2 business days.",
        "design_url", "View Design", "Thank you for your business!",
    ),
    "approved": (
        "Design Approved - Ready for Production", "Design Approved!", "#28a745",
        "background: #d4edda; border-left: 4px solid #28a745;",
        "Great news! Your design has been approved and is ready for production.",
        "Design Details:", "Approved", "Notes",
        "Your design will now move into production. We'll keep you updated on the progress.",
        "order_url", "View Order", "Thank you for choosing {shop_name}!",
    ),
    "rejected": (
        "Design Requires Revision", "Design Requires Revision", "#dc3545",
        "background: #f8d7da; border-left: 4px solid #dc3545;",
        "We've reviewed your design and it requires some revisions before we can proceed.",
        "Design Details:", "Requires Revision", "Feedback",
        "Please review the feedback above and submit a revised design when ready.",
        "design_url", "View Design", "If you have any questions, please don't hesitate to contact us.",
    ),
    "in_production": (
        "Design in Production", "Design in Production", "#007bff",
        "background: #d1ecf1; border-left: 4px solid #007bff;",
        "Your approved design is now in production!",
        "Production Details:", "In Production", "Notes",
        "We're working on your order and will notify you once it's completed.",
        "order_url", "View Order", "Thank you for your patience!",
    ),
    "completed": (
        "Design Completed - Order Ready", "Design Completed!", "#28a745",
        "background: #d4edda; border-left: 4px solid #28a745;",
        "Excellent news! Your custom design has been completed and your order is ready.",
        "Completion Details:", "Completed", "Notes",
        "Your order will be processed for shipping according to your selected shipping method.",
        "order_url", "View Order", "Thank you for choosing {shop_name}!",
    ),
}

# A design returning to review gets the submission email again.
STATUS_TEMPLATE = {"pending": "submitted"}


def design_ref(design: dict) -> str:
    return design.get("handle") or str(design.get("id") or "").split("/")[-1]


def render_design_email(status: str, data: dict) -> tuple[str, str]:
    """Return (subject, html) for a status email; every interpolated value is HTML-escaped."""
    key = STATUS_TEMPLATE.get(status, status)
    if key not in TEMPLATES:
        raise ValueError(f"No email template found for status: {status}")
    (subject, heading, colour, box, intro, box_title, label, notes_label,
     follow_up, link_key, link_label, closing) = TEMPLATES[key]
    e = {k: escape(str(v or ""), quote=True) for k, v in data.items()}
    notes = ""
    if notes_label and data.get("notes"):
        notes = f"<p><strong>{notes_label}:</strong> {e['notes']}</p>"
    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: {colour};">{heading}</h2>
  <p>Hi there,</p>
  <p>{intro}</p>
  <div style="{box} {_BOX}">
    <h3 style="margin-top: 0;">{box_title}</h3>
    <p><strong>Design ID:</strong> {e.get('design_id', '')}</p>
    <p><strong>Product:</strong> {e.get('product_title') or 'Custom Product'}</p>
    <p><strong>Decoration Type:</strong> {e.get('decoration') or 'Not specified'}</p>
    <p><strong>Status:</strong> {label}</p>
    {notes}
  </div>
  <p>{follow_up}</p>
  <p>You can follow along here: <a href="{e.get(link_key, '')}">{link_label}</a></p>
  <p>{closing.format(shop_name=e.get('shop_name', ''))}</p>
  <p>The {e.get('shop_name', '')} Team</p>
</div>
"""
    return subject, html


def render_admin_email(design: dict, shop: dict) -> tuple[str, str]:
    ref = escape(design_ref(design))
    review_url = (f"https://{shop.get('myshopifyDomain', '')}/admin/apps/product-configurator/designs/"
                  f"{quote(str(design.get('id') or ''), safe='')}")
    html = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">New Design Submission</h2>
  <p>A new design has been submitted for review.</p>
  <div style="background: #f8f9fa; {_BOX}">
    <h3 style="margin-top: 0;">Design Details:</h3>
    <p><strong>Design ID:</strong> {ref}</p>
    <p><strong>Customer Email:</strong> {escape(str(design.get('customer_email') or ''))}</p>
    <p><strong>Product:</strong> {escape(str(design.get('product_title') or 'Custom Product'))}</p>
    <p><strong>Decoration Type:</strong> {escape(str(design.get('decoration') or 'Not specified'))}</p>
    <p><strong>Submitted:</strong> {datetime.utcnow().strftime('%Y-%m-%d %H:%M UTC')}</p>
  </div>
  <p><a href="{escape(review_url)}">Review Design</a></p>
  <p>Please review and approve or reject this design.</p>
</div>
"""
    return "New Design Submission", html


def send_email(to: str, subject: str, html: str, sender: Optional[str] = None) -> dict:
    log.info("Email notification to=%s from=%s subject=%s", to, sender, subject)
    log.debug("Email body:\n%s", html)
    return dict(EMAIL_STUB_RESULT)


def send_design_notification(
    design: dict,
    status: str,
    notes: str = "",
    settings: Optional[AppSettings] = None,
    shop: Optional[dict] = None,
) -> dict:
    settings = settings or load_settings()
    if not settings.customer_notifications:
        log.info("Customer notifications are disabled")
        return {"success": False, "message": "Customer notifications disabled"}
    shop = shop or shopify.get_shop()
    domain = shop.get("myshopifyDomain", "")
    email = design.get("customer_email") or ""
    subject, html = render_design_email(status, {
        "design_id": design_ref(design),
        "product_title": design.get("product_title"),
        "decoration": design.get("decoration"),
        "notes": notes,
        "shop_name": shop.get("name"),
        "design_url": f"https://{domain}/apps/my-designs?email={quote(email, safe='')}",
        "order_url": design.get("order_url") or f"https://{domain}/account",
    })
    return send_email(
        to=email,
        subject=f"{shop.get('name')} - {subject}",
        html=html,
        sender=settings.notification_email or shop.get("email"),
    )


def send_admin_notification(design: dict, settings: Optional[AppSettings] = None, shop: Optional[dict] = None) -> dict:
    settings = settings or load_settings()
    shop = shop or shopify.get_shop()
    subject, html = render_admin_email(design, shop)
    return send_email(
        to=settings.notification_email or shop.get("email"),
        subject=f"{shop.get('name')} - {subject}",
        html=html,
        sender=shop.get("email"),
    )
