"""DigiStock - livestock clearance, movement permit and ownership transfer backend"""
