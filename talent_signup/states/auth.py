from aiogram.fsm.state import State, StatesGroup

class LoginFSM(StatesGroup):
    entering_email = State()
    entering_password = State()

class AttachmentFSM(StatesGroup):
    uploading_cv = State()
