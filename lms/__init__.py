"""
Course platform API.

Students browse and enroll in courses and track lesson progress; educators
author course content; admins manage accounts.
"""
