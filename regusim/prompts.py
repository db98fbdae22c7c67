"""Prompt templates for the narrative generator."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass
class PromptTemplate:
    """Represents a templated prompt with ``{{placeholder}}`` markers."""

    name: str
    system: str
    user: str
    description: str = ""


@dataclass
class RenderedPrompt:
    system: str
    user: str


class PromptLibrary:
    """Container for named narrative prompt templates."""

    def __init__(self) -> None:
        self.templates: Dict[str, PromptTemplate] = {}

    def register(self, template: PromptTemplate) -> None:
        self.templates[template.name] = template

    def get(self, name: str) -> PromptTemplate:
        return self.templates[name]


def render_prompt(template: PromptTemplate, values: Dict[str, str]) -> RenderedPrompt:
    """Substitute ``{{key}}`` placeholders in both prompt halves.

    Double braces keep placeholders distinct from the JSON braces in the
    example outputs. Unknown placeholders are left untouched.
    """

    system = template.system
    user = template.user
    for key, value in values.items():
        placeholder = "{{" + key + "}}"
        system = system.replace(placeholder, value)
        user = user.replace(placeholder, value)
    return RenderedPrompt(system=system, user=user)


# Default templates ------------------------------------------------------------

DEFAULT_PROMPTS = PromptLibrary()

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="brief",
        system=(
            "You are ReguSim, an advanced AI for Islamic Finance regulation. "
            "Generate a short, professional pre-simulation brief (max 100 words)."
        ),
        user=(
            "Parameters:\n"
            "- Tangibility Ratio Requirement: {{tangibility_ratio_min}}%\n"
            "- Market Liquidity Base: {{market_liquidity_base}}/100\n"
            "- Investor Panic Sensitivity: {{investor_panic_sensitivity}}/100\n"
            "- Shock Event: {{shock_scenario}}\n\n"
            "Explain the theoretical risk before the simulation starts.\n"
            "Respond with JSON only: {\"text\": \"<brief>\"}"
        ),
        description="Explains the theoretical risk of a configuration before the run.",
    )
)

DEFAULT_PROMPTS.register(
    PromptTemplate(
        name="report",
        system=(
            "You are ReguSim, a central bank regulatory AI. "
            "Analyze the results of a Q-ABM stress test on the Sukuk market."
        ),
        user=(
            "Configuration:\n"
            "- Tangibility Ratio: {{tangibility_ratio_min}}%\n"
            "- Shock: {{shock_scenario}}\n\n"
            "Results:\n"
            "- Total Market Drop: {{market_drop_pct}}%\n"
            "- Final Systemic Risk Score: {{final_systemic_risk}}/100\n"
            "- Peak Systemic Risk Score: {{peak_systemic_risk}}/100\n"
            "- Stress Level: {{stress_level}}\n"
            "- Defaults Count: {{final_default_count}}\n\n"
            "Provide a JSON response with the following structure:\n"
            "{\n"
            "  \"summary\": \"A concise executive summary of the contagion event.\",\n"
            "  \"risk_assessment\": \"Assessment of the systemic fragility exposed.\",\n"
            "  \"recommendations\": [\"Policy recommendation 1\", \"Policy recommendation 2\", "
            "\"Policy recommendation 3\"]\n"
            "}\n"
            "Do not use Markdown formatting in the response, just the raw JSON string."
        ),
        description="Summarises a completed run and recommends policy responses.",
    )
)
