"""
ClassPlanner - manual timetable assignment against the academic scheduling API.
"""
