"""Auction house core: fixed-point math, parameters, registry, pricing, settlement"""
