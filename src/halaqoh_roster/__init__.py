'''
Halaqoh Roster backend: teacher provisioning and roster reporting for
Quran memorization circles. The ASGI app lives in .main.
'''
