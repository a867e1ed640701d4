"""Pure scoring and similarity computations"""
