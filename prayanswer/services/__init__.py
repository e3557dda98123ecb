"""Core services: attachments, text extraction, reminders, widget, lifecycle."""
