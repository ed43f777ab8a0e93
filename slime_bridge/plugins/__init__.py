"""
Acquisition source plugins. Importing a module registers its source type.
"""
