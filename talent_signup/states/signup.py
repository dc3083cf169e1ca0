from aiogram.fsm.state import State, StatesGroup

class SignupFSM(StatesGroup):
    reviewing_stage = State()  # Stage screen with the action buttons
    entering_field = State()  # Free-text field input (data['current_field'])
    entering_skill = State()
    entering_contact = State()  # New contact field input (data['contact_field'])
    uploading_file = State()  # Document upload (data['file_field'])
