"""
JIRA webhook bridge that turns tickets into AI-generated enhancements and stories.
"""

__version__ = "1.0.0"
