"""Authentication: registration, login and credential checks"""
