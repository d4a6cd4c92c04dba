"""
MJML Email Templates
License reminder, assignment and configuration test emails
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

THEME = {
    "primary": "#667eea",
    "primary_dark": "#764ba2",
    "background": "#f8f9fa",
    "text_primary": "#0f172a",
    "text_secondary": "#334155",
    "text_muted": "#64748b",
    "border": "#e2e8f0",
    "info": "#3b82f6",
    "warning": "#f59e0b",
    "urgent": "#f97316",
    "critical": "#ef4444",
    "expired": "#991b1b",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    accent: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""
    accent = accent or THEME["primary"]

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{escape(cta_url)}"
              background-color="{accent}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{accent}" padding="30px 20px" border-radius="10px 10px 0 0">
          <mj-column>
            <mj-text align="center" font-size="28px" font-weight="700" color="#ffffff" padding="0">
              RenovaHub
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="32px 40px 40px 40px">
          <mj-column>
            <mj-text font-size="22px" font-weight="600" color="{THEME['text_primary']}" padding="0 0 16px 0">
              {title}
            </mj-text>
            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="12px" color="#94a3b8" padding="0">
              Este mensaje fue enviado automáticamente por RenovaHub.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def license_reminder_template(
    title: str,
    body: str,
    software_name: str,
    renewal_date: str,
    urgency_level: str,
    renewal_url: Optional[str] = None,
) -> str:
    """Expiration reminder for the license's responsible user"""
    content = f"""
    <mj-text>{escape(body)}</mj-text>
    <mj-text padding="8px 0 0 0" color="{THEME['text_muted']}">
      <strong>Software:</strong> {escape(software_name)}<br/>
      <strong>Fecha de renovación:</strong> {renewal_date}
    </mj-text>
    """
    return get_base_template(
        title=escape(title),
        preview_text=escape(body),
        content_sections=content,
        cta_url=renewal_url or f"{FRONTEND_URL}/licenses",
        cta_label="Renovar licencia" if renewal_url else "Ver licencias",
        accent=THEME.get(urgency_level),
    )


def license_assigned_template(software_name: str, renewal_date: str) -> str:
    content = f"""
    <mj-text>
      Se te ha asignado la licencia de <strong>{escape(software_name)}</strong>.
      Vence el {renewal_date}.
    </mj-text>
    """
    return get_base_template(
        title="Nueva Licencia Asignada",
        preview_text=f"Licencia de {escape(software_name)} asignada",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/licenses",
        cta_label="Ver licencias",
    )


def email_config_test_template(provider: str) -> str:
    content = f"""
    <mj-text>
      ¡Excelente! Tu configuración de email está funcionando correctamente.
    </mj-text>
    <mj-text color="{THEME['text_muted']}">
      Proveedor: <strong>{escape(provider.upper())}</strong><br/>
      Las notificaciones de renovación de licencias se enviarán desde esta cuenta.
    </mj-text>
    """
    return get_base_template(
        title="🎉 ¡Configuración Exitosa!",
        preview_text="Prueba de Configuración Email - RenovaHub",
        content_sections=content,
    )
