"""
Encyclopedia app: production tables (persons, biographies, photos, news and
the other section tables) written by the moderation pipeline.
"""
