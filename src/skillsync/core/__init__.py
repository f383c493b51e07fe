"""Skill synchronization engine."""
