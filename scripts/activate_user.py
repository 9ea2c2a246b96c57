#!/usr/bin/env python3
import argparse
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parents[1]
sys.path.append(str(project_root))

from sqlmodel import Session

from app.core.database import engine
from app.core.errors import EditConflictError
from app.services.users import UserService


def main() -> int:
    parser = argparse.ArgumentParser(description="Activar la cuenta de un usuario por email")
    parser.add_argument("--email", required=True, help="Email del usuario")
    args = parser.parse_args()

    email = args.email.strip().lower()

    with Session(engine) as session:
        user = UserService.get_by_email(session, email)
        if not user:
            print(f"❌ Usuario no encontrado: {email}")
            return 1
        if user.activated:
            print(f"ℹ️  La cuenta ya estaba activada: {email}")
            return 0

        try:
            UserService.activate(session, user)
        except EditConflictError:
            print(f"❌ El usuario fue modificado en paralelo, reintentá: {email}")
            return 1

    print(f"✅ Cuenta activada para {email}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
