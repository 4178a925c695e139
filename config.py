import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list of browser origins allowed for HTTP and Socket.IO
    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            'CORS_ORIGINS',
            'http://localhost:5173,http://127.0.0.1:5173,http://localhost:5174,http://127.0.0.1:5174',
        ).split(',')
        if origin.strip()
    ]
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # 'background' runs countdowns as Socket.IO background tasks, 'manual' waits for advance()
    TIMER_MODE = os.environ.get('TIMER_MODE', 'background')
    # Seconds between countdown ticks
    TIMER_TICK_SEC = float(os.environ.get('TIMER_TICK_SEC', '1'))
    HOST = os.environ.get('HOST', '127.0.0.1')
    PORT = int(os.environ.get('PORT', '8080'))
