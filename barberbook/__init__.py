"""BarberBook - booking and billing core for barbershops"""
