"""HTTP quote service for stable-swap pools."""
