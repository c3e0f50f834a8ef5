"""
Prompt templates for record generation.

Templates use ``{{name}}`` placeholders. Each can be replaced by a file on
disk through WorkflowSettings.
"""

from pathlib import Path
from typing import Optional

from enhancement_bridge.core.constants import PROMPT_FALLBACKS, Variant

GENERATION_PROMPTS = {
    Variant.ENHANCEMENT: """
You are a senior business analyst. Break the JIRA requirement below into
well-scoped enhancement tickets.

## Source ticket
Ticket: {{ticketId}}

### Description
{{description}}

### I want
{{i_want}}

### So that
{{so_that}}

### Acceptance criteria
{{acceptance_criteria}}

## Additional instructions
{{customPrompt}}

## Output
Respond with JSON only, in exactly this shape:

{
  "enhancements": [
    {
      "enhancement_id": "{{ticketId}}-ENH-1",
      "summary": "Short title",
      "description": "What needs to change and why",
      "i_want": "As a <role>, I want ...",
      "so_that": "So that ...",
      "acceptance_criteria": "Given / When / Then criteria"
    }
  ]
}
""",

    Variant.STORY: """
You are a senior business analyst. Write user stories for the JIRA ticket
below.

## Source ticket
Ticket: {{ticketId}}

### User story summary
{{user_story_summary}}

### Description
{{description}}

### Check points
{{check_points}}

### Validations
{{validations}}

## Additional instructions
{{customPrompt}}
""",
}

STORY_RESPONSE_INSTRUCTION = """
Respond with a single JSON object and nothing else, no prose and no
markdown fences, in exactly this shape:

{"stories": [{"story_id": "{{ticketId}}-STORY-1", "summary": "...", "user_story_summary": "...", "check_points": "...", "description": "...", "validations": "..."}]}
"""

# Placeholders filled from the ticket, per variant
TEMPLATE_FIELDS = {
    Variant.ENHANCEMENT: ("description", "i_want", "so_that", "acceptance_criteria"),
    Variant.STORY: ("user_story_summary", "check_points", "description", "validations"),
}


def load_template(variant: Variant, override_path: Optional[str] = None) -> str:
    """
    Return the prompt template for a variant.

    Raises:
        FileNotFoundError: If an override path is configured but missing
    """
    if override_path:
        path = Path(override_path)
        if not path.is_file():
            raise FileNotFoundError(override_path)
        return path.read_text(encoding="utf-8")
    return GENERATION_PROMPTS[variant]


def render_prompt(
    template: str,
    variant: Variant,
    ticket_id: str,
    values: dict[str, Optional[str]],
    custom_prompt: str = "",
) -> str:
    """
    Substitute ``{{placeholder}}`` markers with ticket values.

    Missing values fall back to fixed placeholder text. When the template
    has no ``{{customPrompt}}`` marker the custom prompt is appended.
    """
    body = template
    if custom_prompt and "{{customPrompt}}" not in body:
        body = f"{body.rstrip()}\n\n{custom_prompt}\n"
    if variant == Variant.STORY:
        body = f"{body.rstrip()}\n{STORY_RESPONSE_INSTRUCTION}"

    replacements = {
        name: values.get(name) or PROMPT_FALLBACKS[name]
        for name in TEMPLATE_FIELDS[variant]
    }
    replacements["ticketId"] = ticket_id
    replacements["customPrompt"] = custom_prompt or " "

    for name, value in replacements.items():
        body = body.replace("{{" + name + "}}", value)
    return body.strip()
