"""Domain packages - one per area of the marketplace, each exposing a router"""
