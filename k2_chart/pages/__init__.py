"""K2 Chart pages"""
