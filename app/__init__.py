"""
Learning Hub AI Application

A FastAPI-based microservice that generates study aids:
- Study plans from a course syllabus
- Flashcards from a document
- Mind maps from a study plan
"""

__version__ = "1.0.0"
