"""
Services Layer

Roster, allocation and schedule engine for rooms:
- Accept domain inputs (sessions, rooms, IDs)
- Return domain outputs (models, dataclasses)
- Do NOT depend on HTTP request/response objects
- Do NOT commit; callers wrap each operation in unit_of_work.room_mutation
"""
