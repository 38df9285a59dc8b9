"""VillaCare API - villa cleaning marketplace backend"""
