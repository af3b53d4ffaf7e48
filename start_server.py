#!/usr/bin/env python3
"""
Startup script for the Creative Portrait Studio
"""

import os
import sys

from portrait_studio.config import load_config, load_env_file


def check_environment():
    """Check if environment is properly configured"""
    print("🔍 Checking environment...")

    if not load_env_file():
        print("   Copy env.example to .env and add your GEMINI_API_KEY")

    config = load_config()
    if not config.has_api_key:
        print("❌ GEMINI_API_KEY not found")
        print("   The studio will start, but every analysis or generation will report a missing credential.")
    else:
        print("✅ Gemini API key configured")

    print(f"   Text model:  {config.text_model}")
    print(f"   Image model: {config.image_model}")
    return config


def start_server(config, port):
    """Start the Flask server"""
    print("\n🚀 Starting Creative Portrait Studio...")
    print("=" * 50)

    try:
        from app import create_app
        app = create_app(config)

        print("✅ Server starting successfully!")
        print("\n📡 Available endpoints:")
        print(f"   Web Interface: http://localhost:{port}")
        print(f"   API Health:    http://localhost:{port}/api/v1/health")
        print(f"   API State:     http://localhost:{port}/api/v1/state")
        print("\n" + "=" * 50)

        app.run(debug=os.getenv('FLASK_DEBUG', '1') == '1', host='0.0.0.0', port=port)
        return True
    except Exception as e:
        print(f"❌ Error starting server: {e}")
        return False


def main():
    """Main startup function"""
    print("🎨 Creative Portrait Studio")
    print("=" * 50)

    config = check_environment()
    if not start_server(config, int(os.getenv('PORT', '5000'))):
        sys.exit(1)


if __name__ == "__main__":
    main()
