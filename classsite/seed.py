"""
Startup bootstrap: admin account and default content.
"""

from __future__ import annotations

import logging

from classsite.store import ContentBackend

logger = logging.getLogger(__name__)

DEFAULT_STRUCTURE = [
    {"position": "Wali Kelas", "name": "Bapak/Ibu Guru", "icon": "👩‍🏫", "level": "leader"},
    {"position": "Ketua Kelas", "name": "Nama Ketua", "icon": "👑", "level": "executive"},
    {"position": "Wakil Ketua", "name": "Nama Wakil Ketua", "icon": "🤝", "level": "executive"},
    {"position": "Sekretaris 1", "name": "Nama Sekretaris 1", "icon": "📝", "level": "staff"},
    {"position": "Sekretaris 2", "name": "Nama Sekretaris 2", "icon": "📋", "level": "staff"},
    {"position": "Bendahara 1", "name": "Nama Bendahara 1", "icon": "💰", "level": "staff"},
    {"position": "Bendahara 2", "name": "Nama Bendahara 2", "icon": "💳", "level": "staff"},
    {"position": "Keamanan 1", "name": "Nama Keamanan 1", "icon": "🛡️", "level": "division"},
    {"position": "Keamanan 2", "name": "Nama Keamanan 2", "icon": "🔒", "level": "division"},
    {"position": "Rohani 1", "name": "Nama Rohani 1", "icon": "🕊️", "level": "division"},
    {"position": "Rohani 2", "name": "Nama Rohani 2", "icon": "🤲", "level": "division"},
    {"position": "Kebersihan 1", "name": "Nama Kebersihan 1", "icon": "🧹", "level": "division"},
    {"position": "Kebersihan 2", "name": "Nama Kebersihan 2", "icon": "✨", "level": "division"},
]


def seed_defaults(backend: ContentBackend) -> None:
    """Insert the default roster and settings into empty collections."""
    if backend.structure.count() == 0:
        for member in DEFAULT_STRUCTURE:
            backend.structure.create(member)
        logger.info("Created default structure entries.")
    if not backend.settings.exists():
        backend.settings.get()
