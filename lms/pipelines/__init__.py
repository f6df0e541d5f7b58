"""
Course platform pipelines.

Business logic orchestration functions. Routers import the modules directly,
e.g. ``from lms.pipelines import enrollments as enrollment_pipelines``.
"""
