"""
Core sync machinery: scheduler, criteria, dispatcher and reaper.
"""
