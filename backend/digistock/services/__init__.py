"""DigiStock - Services"""
