import html


# Brand colours: savanna gold on deep acacia green
ACACIA = "#1F3B2D"
SAVANNA = "#E0A526"
SAND = "#FBF7EF"

SUBJECTS = {
    "guide_tip": "You've received a tip of {amount}!",
    "company_tip": "The team received a tip of {amount}",
    "admin_copy": "[Tip] {amount} for {recipient_name}",
}

HTML_TEMPLATES = {
    "guide_tip": """
    <div style="font-family: 'Helvetica Neue', Arial, sans-serif; max-width: 520px; margin: 40px auto; padding: 32px; background: {sand}; color: {acacia}; border-radius: 16px; border: 1px solid {savanna};">
      <p style="margin:0; font-size:14px; color:{savanna}; text-transform:uppercase; letter-spacing:1px;">Asante sana!</p>
      <h2 style="margin:16px 0; font-size:24px;">Hi {recipient_name}, you received {amount}</h2>
      <p style="margin:0; font-size:15px; line-height:1.6;">
        <strong>{sender_name}</strong> sent you a tip to say thank you for the safari.
      </p>
      {message_block}
      <p style="margin:32px 0 0; font-size:13px; color:#6B7B70;">Reference: {tip_id}</p>
    </div>
    """,

    "company_tip": """
    <div style="font-family: 'Helvetica Neue', Arial, sans-serif; max-width: 520px; margin: 40px auto; padding: 32px; background: {sand}; color: {acacia}; border-radius: 16px; border: 1px solid {savanna};">
      <p style="margin:0; font-size:14px; color:{savanna}; text-transform:uppercase; letter-spacing:1px;">Team tip</p>
      <h2 style="margin:16px 0; font-size:24px;">{amount} for the whole team</h2>
      <p style="margin:0; font-size:15px; line-height:1.6;">
        <strong>{sender_name}</strong> left a tip for everyone at {company_name}.
      </p>
      {message_block}
      <p style="margin:32px 0 0; font-size:13px; color:#6B7B70;">Reference: {tip_id}</p>
    </div>
    """,

    "admin_copy": """
    <div style="font-family: 'Helvetica Neue', Arial, sans-serif; max-width: 520px; margin: 40px auto; padding: 24px; background: #FFFFFF; color: #222; border: 1px solid #DDD; border-radius: 8px;">
      <h3 style="margin:0 0 16px;">New tip received</h3>
      <table style="width:100%; font-size:14px;">
        <tr><td style="padding:4px 0;">Amount</td><td style="text-align:right;">{amount}</td></tr>
        <tr><td style="padding:4px 0;">Recipient</td><td style="text-align:right;">{recipient_name} ({recipient_type})</td></tr>
        <tr><td style="padding:4px 0;">Recipient ID</td><td style="text-align:right;">{recipient_id}</td></tr>
        <tr><td style="padding:4px 0;">From</td><td style="text-align:right;">{sender_name}</td></tr>
        <tr><td style="padding:4px 0;">Stripe session</td><td style="text-align:right;">{session_id}</td></tr>
        <tr><td style="padding:4px 0;">Reference</td><td style="text-align:right;">{tip_id}</td></tr>
      </table>
      {message_block}
    </div>
    """,
}

MESSAGE_BLOCK = """
      <blockquote style="margin:24px 0 0; padding:12px 16px; border-left:3px solid {savanna}; font-style:italic;">{message}</blockquote>
"""


def render_tip_email(template_key: str, context: dict) -> tuple:
    """Return (subject, html) for a tip email. User-supplied text is HTML-escaped."""
    safe = {k: html.escape(str(v)) if v is not None else "" for k, v in context.items()}
    safe.update(acacia=ACACIA, savanna=SAVANNA, sand=SAND)
    safe["message_block"] = MESSAGE_BLOCK.format(**safe) if safe.get("message") else ""

    subject = SUBJECTS[template_key].format(**context)
    body = HTML_TEMPLATES[template_key].format(**safe)
    return subject, body
