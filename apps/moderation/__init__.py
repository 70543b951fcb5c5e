"""
Moderation app: review of user submissions and person suggestions, and the
publish step that turns approved content into production records.
"""
