"""Domain port protocols for decoupling services from platform collaborators."""

from .calendar_gateway import CalendarGateway
from .notification_center import NotificationCenter
from .speech_recognizer import SpeechRecognizer
from .text_engines import TextRecognizer, TextRewriter
from .widget_surface import WidgetSurface

__all__ = [
    "CalendarGateway",
    "NotificationCenter",
    "SpeechRecognizer",
    "TextRecognizer",
    "TextRewriter",
    "WidgetSurface",
]
