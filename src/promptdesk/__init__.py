"""promptdesk -- topic-specific instruction prompts for National Assembly staff documents."""

__version__ = "0.1.0"
