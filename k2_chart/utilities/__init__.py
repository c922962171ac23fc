"""K2 Chart utilities"""
