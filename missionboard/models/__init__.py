"""
MissionBoard
SQLAlchemy extension instance shared by every model module.

Usage:
    from missionboard.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
