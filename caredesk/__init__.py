"""
CareDesk Hospital Administration
"""
