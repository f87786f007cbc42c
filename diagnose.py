import sys
import os
import json

# Add project root to path
sys.path.append(os.getcwd())

try:
    import httpx
    from alert_bridge.core.use_cases.alert_validator import validate_alert
    from alert_bridge.core.use_cases.alert_normalizer import normalize_alert
    from alert_bridge.core.use_cases.analysis_extractor import RegexResponseExtractor
    from alert_bridge.api.main import app
    print("✅ All imports successful.")
except Exception as e:
    print(f"❌ Import failed: {e}")
    sys.exit(1)

TEST_ALERT = {
    "symbol": "BTCUSDT",
    "price": 45000,
    "action": "buy",
    "timeframe": "1h",
    "exchange": "binance",
    "message": "RSI below 30, potential buy signal detected",
}


# Offline check of the pure stages
def test_pipeline_stages():
    try:
        alert = normalize_alert(validate_alert(TEST_ALERT))
        extraction = RegexResponseExtractor().extract("Recommended Action: buy\nConfidence: 85%\nRisk Level: low")
        if alert.symbol == "BTCUSDT" and extraction.confidence == 85:
            print("✅ Validation, normalisation and extraction passed.")
        else:
            print(f"❌ Unexpected stage output: {alert} / {extraction}")
    except Exception as e:
        print(f"❌ Pipeline stages raised exception: {e}")


# Posts the sample alert to a running server
def test_webhook(port: str):
    url = f"http://localhost:{port}/webhook/tradingview"
    print(f"📤 Sending alert to {url}: {json.dumps(TEST_ALERT, indent=2)}")
    try:
        response = httpx.post(url, json=TEST_ALERT, timeout=60.0)
    except httpx.HTTPError as e:
        print(f"❌ Error testing webhook: {e}")
        print(f"💡 Make sure the webhook server is running on port {port}")
        return

    print(f"📥 Response status: {response.status_code}")
    print(f"📥 Response data: {json.dumps(response.json(), indent=2)}")
    print("✅ Webhook test successful!" if response.is_success else "❌ Webhook test failed!")


if __name__ == "__main__":
    test_pipeline_stages()
    test_webhook(os.getenv("PORT", "5001"))
