# Configuration and shared errors
