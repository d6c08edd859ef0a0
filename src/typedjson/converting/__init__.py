"""
Conversion machinery shared by serialization and deserialization.
"""
