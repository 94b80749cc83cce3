"""Matchlog - watched football fixtures, reminders and personal stats."""
