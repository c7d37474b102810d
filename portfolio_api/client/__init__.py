"""
Client-side pieces of the portfolio site: the contact form flow and the
theme preference.
"""

from .contact_form import ContactForm, FormOutcome, Notification
from .theme import JsonFileThemeStore, MemoryThemeStore, ThemePreference

__all__ = [
    "ContactForm",
    "FormOutcome",
    "Notification",
    "ThemePreference",
    "MemoryThemeStore",
    "JsonFileThemeStore",
]
