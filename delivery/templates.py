"""
Email templates and placeholder substitution.

Substitution is literal `{{key}}` replacement. A placeholder with no matching
substitution stays in the output as-is.
"""

from typing import Dict, Mapping

NEWS_SUMMARY_TEMPLATE_ID = "news-summary"
WELCOME_TEMPLATE_ID = "welcome"

NEWS_SUMMARY_EMAIL_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Market News Summary</title>
</head>
<body style="margin:0;padding:0;background-color:#050505;font-family:Arial,Helvetica,sans-serif;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#050505;">
    <tr>
      <td align="center" style="padding:40px 20px;">
        <table role="presentation" width="600" cellspacing="0" cellpadding="0"
               style="max-width:600px;background-color:#141414;border-radius:8px;border:1px solid #30333A;">
          <tr>
            <td style="padding:40px 40px 20px 40px;">
              <h1 style="margin:0;font-size:24px;color:#FDD458;">Market News Summary Today</h1>
              <p style="margin:8px 0 0 0;font-size:14px;color:#6B7280;">{{date}}</p>
            </td>
          </tr>
          <tr>
            <td style="padding:0 40px 40px 40px;color:#CCDADC;font-size:16px;line-height:1.6;">
              {{newsContent}}
            </td>
          </tr>
          <tr>
            <td style="padding:20px 40px;border-top:1px solid #30333A;font-size:12px;color:#6B7280;">
              You're receiving this because you subscribed to Market Digest news updates.
              This email is for information only and is not investment advice.
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""

WELCOME_EMAIL_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Welcome to Market Digest</title>
</head>
<body style="margin:0;padding:0;background-color:#050505;font-family:Arial,Helvetica,sans-serif;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#050505;">
    <tr>
      <td align="center" style="padding:40px 20px;">
        <table role="presentation" width="600" cellspacing="0" cellpadding="0"
               style="max-width:600px;background-color:#141414;border-radius:8px;border:1px solid #30333A;">
          <tr>
            <td style="padding:40px;color:#CCDADC;font-size:16px;line-height:1.6;">
              <h1 style="margin:0 0 24px 0;font-size:24px;color:#FDD458;">Welcome aboard, {{name}}</h1>
              {{intro}}
              <p>Add symbols to your watchlist and we'll send you a personalized market news summary every day.</p>
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>
"""

TEMPLATES: Dict[str, str] = {
    NEWS_SUMMARY_TEMPLATE_ID: NEWS_SUMMARY_EMAIL_TEMPLATE,
    WELCOME_TEMPLATE_ID: WELCOME_EMAIL_TEMPLATE,
}


def render(template: str, substitutions: Mapping[str, str]) -> str:
    """Replace each `{{key}}` with its value."""
    html = template
    for key, value in substitutions.items():
        html = html.replace("{{" + key + "}}", str(value))
    return html


def render_template(template_id: str, substitutions: Mapping[str, str]) -> str:
    """Render a registered template by id. Raises KeyError for unknown ids."""
    return render(TEMPLATES[template_id], substitutions)
