"""missionboard.integrations — persistence collaborator modules.

Services and blueprints never query the mission/recommendation tables
directly; they go through a RecordStore:

  record_store.RecordStore          — the contract + buffered change feed
  record_store.InMemoryRecordStore  — dict-backed, development and tests
  sql_store.SqlRecordStore          — Flask-SQLAlchemy system of record
"""
