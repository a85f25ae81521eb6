"""
Vigie infrastructure: block source adapters and event emitter.
"""
