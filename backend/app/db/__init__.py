"""
Database module for Hindustan Founders Network

Contains demo seed data.
"""
from app.db.seed_data import seed_all, seed_demo_data

__all__ = ["seed_all", "seed_demo_data"]
