"""
Vigie domain layer: entities, value objects, exceptions and ports.
"""
