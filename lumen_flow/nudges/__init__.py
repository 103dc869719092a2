"""Notification nudge evaluator: quiet hours, rules, duplicate suppression and scheduling."""
