KART_TIMER_BASE_URL = "https://kart-timer.com/drivers/ajax.php"
KART_TIMER_TRACK_ID = 110
LIVE_SCREEN_API_URL = f"{KART_TIMER_BASE_URL}?p=livescreen&track={KART_TIMER_TRACK_ID}&target=updaterace"

WEATHER_API_BASE_URL = "https://api.weatherapi.com/v1"
CURRENT_WEATHER_API_URL = f"{WEATHER_API_BASE_URL}/current.json"
