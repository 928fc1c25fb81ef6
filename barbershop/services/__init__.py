"""Business logic for the barbershop API, one service class per concern."""
