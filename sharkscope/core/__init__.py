# Core capture and analysis logic
