"""
Data Schemas

- color: LabColor / XYZColor value types
- recipe: recipe and correction result structures
- options: pydantic option models
"""
