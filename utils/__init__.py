"""
Utilities Package

- core: LLM initialization
- errors: error taxonomy, classification and handlers
- monitoring: structured logging and flow metrics
"""
