# Configuration loading for the purchase client
