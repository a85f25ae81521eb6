"""
Application layer: confirmation tracker, watch strategies and handle.
"""
