import getpass

from sqlalchemy import select

from app.core.db import SessionLocal
from app.core.security import hash_password, normalize_username
from app.models.user import ADMIN_ROLE, User


def create_admin(session, username: str, password: str, email: str = "", full_name: str = "Administrador") -> User:
    user = User(
        username=normalize_username(username),
        email=email,
        full_name=full_name,
        role=ADMIN_ROLE,
        is_active=True,
        password_hash=hash_password(password),
    )
    session.add(user)
    session.commit()
    return user


def main():
    with SessionLocal() as session:
        if session.scalar(select(User.id).limit(1)):
            print("Ya existen usuarios. Abortando.")
            return
        username = input("Usuario admin: ").strip()
        email = input("Email (opcional): ").strip()
        if not username:
            print("El usuario es requerido.")
            return
        while True:
            password = getpass.getpass("Contraseña: ")
            confirm = getpass.getpass("Confirma contraseña: ")
            if not password or password != confirm:
                print("Las contraseñas no coinciden o están vacías. Intenta de nuevo.")
                continue
            try:
                create_admin(session, username, password, email)
                break
            except ValueError as exc:
                print(f"Error: {exc}")
        print("Usuario admin creado correctamente.")


if __name__ == "__main__":
    main()
