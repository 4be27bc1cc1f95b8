"""Storage for the progression engine: PostgreSQL and in-memory"""
