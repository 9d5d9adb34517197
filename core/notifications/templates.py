"""Message template loading and rendering."""

from pathlib import Path

import yaml

from core.enums import MessageVariant

_templates: dict | None = None


def load_templates() -> dict:
    """
    Load message templates from YAML file.

    Caches templates after first load.
    """
    global _templates
    if _templates is not None:
        return _templates

    yaml_path = Path(__file__).parent / "messages.yaml"
    with open(yaml_path) as f:
        _templates = yaml.safe_load(f)

    return _templates


def render_message(template: str, context: dict) -> str:
    """
    Render a message template with context variables.

    Args:
        template: String with {variable} placeholders
        context: Dict of variable names to values

    Returns:
        Rendered string

    Raises:
        KeyError: If a required variable is missing from context
    """
    return template.format(**context)


def get_message(message_type: str, channel: str, context: dict) -> str:
    """
    Get and render a message for a specific type and channel.

    Args:
        message_type: e.g., "rescheduled", "admin_alert"
        channel: "email_subject" or "email_body"
        context: Variables to substitute

    Returns:
        Rendered message string
    """
    templates = load_templates()
    template = templates[message_type][channel]
    return render_message(template, context)


def get_email(variant: MessageVariant, context: dict) -> tuple[str, str]:
    """Rendered (subject, body) for a message variant."""
    return (
        get_message(variant.value, "email_subject", context).strip(),
        get_message(variant.value, "email_body", context),
    )


def get_whatsapp_message(
    variant: MessageVariant, context: dict
) -> tuple[str, list[str]]:
    """Template name and rendered ordered parameters for a message variant."""
    template = load_templates()[variant.value]
    params = [render_message(param, context) for param in template["whatsapp_params"]]
    return template["whatsapp_template"], params
