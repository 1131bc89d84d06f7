"""
Pydantic request and response schemas for the CourseMart API.
"""
